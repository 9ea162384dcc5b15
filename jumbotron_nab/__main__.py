from jumbotron_nab.app import main

main()
