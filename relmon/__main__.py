from relmon.cli.app import main

main()
